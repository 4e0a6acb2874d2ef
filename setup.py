"""
Setup script for the permission tracker.
"""

from setuptools import setup, find_packages

setup(
    name="permission-tracker",
    version="0.1.0",
    description="Infers how a runtime permission decision came about from two observation channels",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Permission Tracker Team",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"permission_tracker.scenarios": ["builtin/*.yaml"]},
    include_package_data=True,
    install_requires=[
        "pydantic>=2.0.0",
        "rich>=13.0.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "permission-tracker=permission_tracker.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
