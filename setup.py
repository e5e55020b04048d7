from setuptools import setup, find_packages

setup(
    name="gmdhsearch",
    version="1.0",
    description="GMDH search: combinatorial regression model selection",
    author="marcu",
    packages=find_packages(include=["gmdhsearch", "gmdhsearch.*"]),
    python_requires=">=3.10",
    install_requires=["numpy", "polars", "tqdm", "joblib"],
)
