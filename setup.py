from setuptools import setup


setup(
    name="sheet-profiler",
    version="0.1.0",
    description="Local profiling, cleanup and validation for CSV, Excel and JSON tables",
    packages=["sheet_profiler"],
    python_requires=">=3.10",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
    },
    entry_points={
        "console_scripts": [
            "sheet-profiler=sheet_profiler.cli:main",
        ]
    },
)
