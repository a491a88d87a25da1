import re
from pathlib import Path
from setuptools import setup, find_packages

def get_version():
    """
    Read the version from pyproject.toml to avoid duplicating it.
    """
    content = (Path(__file__).parent / "pyproject.toml").read_text()
    match = re.search(r'^version\s*=\s*["\'](.+)["\']', content, re.MULTILINE)
    if match:
        return match.group(1)
    raise RuntimeError("Could not find the version in pyproject.toml")

setup(
    name="woetrack",
    version=get_version(),
    description="Weight of Evidence and Information Value with decision-tree binning",
    author="Cristiano F. Oliveira",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.8",
    install_requires=[
        "pandas<3",
        "numpy",
        "scikit-learn",
        "joblib",
        "tabulate",
        "pyspark",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
