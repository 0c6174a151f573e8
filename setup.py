"""Build the cfllog package."""

from setuptools import setup, find_packages

setup(
    name="cfllog",
    version="0.1.0",
    description="Flight computer binary log decoder and telemetry replay",
    python_requires=">=3.9",
    package_dir={"": "python"},
    packages=find_packages("python"),
    install_requires=["numpy"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": ["cfllog=cfllog.cli:main"],
    },
)
