"""
Setup script for the Interview Assistant package.
"""
from setuptools import setup, find_packages

# Read the long description from README.md
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="interview_assistant",
    version="0.1.0",
    author="Interview Assistant Team",
    author_email="example@example.com",
    description="Timed technical interviews with LLM-generated questions, automatic scoring and a candidate dashboard",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/interview-assistant",
    packages=find_packages(),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "langchain-core>=0.1.0",
        "langchain-google-genai>=0.0.5",
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.2",
        "pyyaml>=6.0",
        "reportlab>=4.1.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "python-multipart>=0.0.6",
        "pymongo>=4.5.0",
        "pdfplumber>=0.10.0",
        "python-docx>=1.0.0"
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "interview-assistant=interview_assistant.cli:main",
        ],
    },
)
