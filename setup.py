# setup.py
from setuptools import find_packages, setup

setup(
    name="rf-mutate",
    version="1.0.0",
    packages=find_packages(include=["rf_mutate", "rf_mutate.*"]),
    package_data={"rf_mutate.conf": ["*.yaml"]},
    install_requires=[
        "numpy>=1.21.0",
        "biopython>=1.81",
        "pandas>=1.3.0,<3",
        "tqdm>=4.65.0",
        "hydra-core>=1.3.0",
        "omegaconf>=2.3.0",
        "ViennaRNA>=2.4.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "isort>=5.0.0",
            "flake8>=4.0.0",
            "hypothesis>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "rf-mutate=rf_mutate.runners.pipeline_cli:main",
        ],
    },
    python_requires=">=3.9",
)
