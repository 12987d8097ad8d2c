from setuptools import setup, find_packages

# --- CONFIGURATION ---
# Only the simulation package ships; the test scripts stay in the repo
packages = find_packages(include=["ticksim", "ticksim.*"])

# --- BUILD ---
setup(
    name="ticksim",
    version="0.1.0",
    description="Tick based digital logic simulation engine",
    packages=packages,
    python_requires=">=3.9",
    install_requires=[
        "PySide6>=6.4",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["ticksim=ticksim.__main__:main"],
    },
)
