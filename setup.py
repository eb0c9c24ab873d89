"""setuptools setup for TaskTimers.

Install for development:
    pip install -e ".[test]"
    python -m tasktimers --list
"""

from setuptools import setup, find_packages

setup(
    name="TaskTimers",
    version="0.1.0",
    description="Named task timers with a Pomodoro mode and crash-safe state",
    packages=find_packages(include=["tasktimers", "tasktimers.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.4",
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["tasktimers=tasktimers.__main__:main"],
    },
)
