from setuptools import setup, find_packages

setup(
    name="garch-var",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["models", "exceptions", "calculate_var"],
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "arch",
        "statsmodels>=0.15",
        "matplotlib",
        "seaborn",
        "tqdm",
        "psutil",
        "yfinance",
        "python-dotenv",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["garch-var=calculate_var:main"],
    },
    python_requires=">=3.8",
)
