from pathlib import Path

from setuptools import find_packages, setup

this_directory = Path(__file__).parent
long_description = (this_directory / "README.rst").read_text()

setup(
    name="cradle_ioc",
    version="0.1.0",
    description="A dependency injection container with lifetimes and hierarchical scopes for Python 3.10 +",
    long_description=long_description,
    license="MIT",
    packages=find_packages(include=["cradle_ioc", "cradle_ioc.*"]),
    python_requires=">=3.10",
    install_requires=["the-utility-belt"],
    extras_require={
        "fastapi": ["fastapi"],
        "test": [
            "pytest",
            "pytest-asyncio",
            "assertive<1.0",
            "fastapi",
            "httpx",
        ],
    },
    include_package_data=True,
    platforms="any",
    classifiers=[
        "Programming Language :: Python",
        "Development Status :: 4 - Beta",
        "Natural Language :: English",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
)
