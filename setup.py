"""
Setup file.
"""

import os

from setuptools import find_packages, setup

KEYWORDS = "embedded arduino littlefs rp2040 esp8266 filesystem uploader microcontroller"
HERE = os.path.dirname(os.path.abspath(__file__))


def read_version() -> str:
    init_py = os.path.join(HERE, "src", "littlefs_upload", "__init__.py")
    with open(init_py, encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=", 1)[1].strip().strip('"')
    raise RuntimeError("Unable to find __version__")


if __name__ == "__main__":
    setup(
        name="littlefs-upload",
        version=read_version(),
        description="Build a LittleFS image from a sketch's data folder and upload it over serial",
        keywords=KEYWORDS,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "psutil",
            "pyserial",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "littlefs-upload=littlefs_upload.cli:main",
            ],
        },
        include_package_data=True)
