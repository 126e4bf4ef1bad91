from setuptools import setup, find_packages

setup(
    name="scriptosaur",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1.7",
        "pydantic>=2.5.3",
        "pyyaml>=6.0.1",
        "rich>=13.7.0",
        "loguru>=0.7.2",
        "gradio>=6.0",
        "google-genai>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "scriptosaur=scriptosaur.cli:main",
        ],
    },
    python_requires=">=3.10",
)
