from pathlib import Path

from setuptools import find_packages, setup


def read(*filenames, **kwargs):
    encoding = kwargs.get("encoding", "utf-8")
    sep = kwargs.get("sep", "\n")
    buf = []

    for filename in filenames:
        with open(filename, encoding=encoding) as f:
            buf.append(f.read())

    return sep.join(buf)


this_directory = Path(__file__).parent
long_description = read(this_directory / "README.rst")

setup(
    name="expressway",
    version="0.1.0",
    license="MIT",
    description="Dependency injection and provider lifecycle for Python 3.10 +",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    packages=find_packages(include=["expressway", "expressway.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=["the-utility-belt"],
    extras_require={
        "fastapi": ["fastapi"],
        "test": ["pytest", "pytest-asyncio", "assertive==0.1.0", "fastapi", "httpx"],
    },
    platforms="any",
    classifiers=[
        "Programming Language :: Python",
        "Development Status :: 4 - Beta",
        "Natural Language :: English",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
)
