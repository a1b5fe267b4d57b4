from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="soltx",
    version="0.1.0",
    author="soltx developers",
    description="Solana transaction decoder and fee estimator",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "solders>=0.21.0",
        "aiohttp>=3.9.0",
        "tenacity>=8.2.0",
        "python-dotenv>=1.0.0",
        "fastapi>=0.110.0",
        "pydantic>=2.0.0",
        "click>=8.0.0",
        "rich>=10.0.0",
    ],
    extras_require={
        "server": [
            "uvicorn>=0.27.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "soltx=soltx.cli.main:cli",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Utilities",
    ],
    python_requires=">=3.11",
)
