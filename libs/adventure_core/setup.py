from setuptools import setup, find_packages

setup(
    name="adventure_core",
    version="0.1.0",
    description="Trip clustering, synthesis and reconciliation utilities for Travel Log",
    packages=find_packages(),
    install_requires=[
        "pydantic>=2.0",
    ],
    python_requires=">=3.9",
)
