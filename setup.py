from setuptools import setup, find_namespace_packages

setup(
    name="pycontain",
    version="0.1.0",
    description="Throwaway docker/podman containers for integration tests",
    packages=find_namespace_packages(where="src", include=["pycontain", "pycontain.*"]),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
        "tenacity>=8.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "psutil>=5.9",
        ],
    },
    entry_points={
        "console_scripts": [
            "pycontain=pycontain.CLI.main:main",
        ],
    },
)
