# setup.py
from setuptools import setup, find_packages

setup(
    name="stock_pulse",
    version="0.1.0",
    packages=find_packages(include=["stock_pulse", "stock_pulse.*"]),
    install_requires=[
        "pandas",
        "numpy",
        "pytz",
        "PyQt6",
        "python-dotenv",
        "python-socketio[asyncio_client]",
        "aiohttp",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
