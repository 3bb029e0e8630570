from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="metalfoams",
    version="0.1.0",
    author="",
    author_email="",
    description="Unit-consistent comparison tables from the metal foam property database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={
        'metalfoams': ['units/*.yaml'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pandas>=1.3.0",
        "rapidfuzz>=2.0.0",
        "pyarrow>=10.0.0",
        "requests>=2.25.0",
        "pyyaml>=5.4",
        "openpyxl>=3.0.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "metalfoams=metalfoams.cli:main",
        ],
    },
)
