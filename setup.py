from setuptools import setup, find_packages

setup(
    name="omics-study-portal",
    version="0.1.0",
    description="Search and browse public omics studies from NCBI GEO/SRA",
    packages=find_packages(include=["src", "src.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "pydantic>=2",
        "python-dotenv",
        "fastapi",
        "starlette",
        "uvicorn",
        "google-genai",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
