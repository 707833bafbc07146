"""
Setup configuration for creatorlens package.
"""

from setuptools import setup, find_packages

setup(
    name="creatorlens",
    version="0.1.0",
    description="TikTok creator analytics: scoring, KPIs, CSV import and AI content ideas",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "supabase>=2.0",
        "python-dotenv>=1.0",
        "pydantic>=2.0",
        "click>=8.0",
        "tqdm>=4.0",
        "numpy>=1.24",
        "pandas>=2.0",
        "pytz",
        "anthropic>=0.30",
        "openai>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "creatorlens=creatorlens.cli.main:cli",
        ],
    },
)
