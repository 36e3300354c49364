from setuptools import find_packages, setup
from pathlib import Path

setup(
    name="exhibit_annotation",
    version=Path("./exhibit_annotation/VERSION").read_text().strip(),
    packages=find_packages(exclude=["tests"]),
    package_data={"exhibit_annotation": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "exhibit-annotation=exhibit_annotation.cli:main",
        ],
    },
)
