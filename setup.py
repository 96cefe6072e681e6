"""
setup.py for the lqocp Python package.

The import package lives under python/:
    pip install -e .

Run the tests with:
    pip install -e ".[test]"
    pytest tests/python
"""

from setuptools import find_packages, setup

setup(
    name="lqocp",
    version="0.1.0",
    description="LQ subproblem transcription and structured QP solving for optimal control",
    package_dir={"": "python"},
    packages=find_packages(where="python"),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "scipy>=1.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "hypothesis>=6.0",
            "black>=23.0",
            "ruff>=0.1.0",
            "mypy>=1.0",
        ],
    },
)
