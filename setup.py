from pathlib import Path

from setuptools import find_packages, setup  # isort: skip


HERE = Path(__file__).resolve().parent


def get_long_description():
    readme = HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="flipt-openfeature-provider",
    version="0.1.0",
    description="Flipt provider for the OpenFeature Python SDK",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    license="Apache-2.0",
    packages=find_packages(exclude=["tests*"]),
    package_data={
        "flipt_openfeature": ["py.typed"],
    },
    zip_safe=False,
    python_requires=">=3.8",
    install_requires=[
        "envier~=0.6",
        "grpcio>=1.50",
        "openfeature-sdk>=0.7.0",
        "protobuf>=4.22",
    ],
    extras_require={
        "test": [
            "mock",
            "pytest",
            "pytest-cov",
            "coverage",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
