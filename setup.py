"""Setup file for grocerylist package."""
from setuptools import setup, find_namespace_packages

setup(
    name="grocerylist",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["grocerylist*"]),
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "loguru>=0.7",
    ],
    extras_require={
        "test": [
            "pytest>=8.1.1",
        ],
    },
    python_requires=">=3.11",
)
