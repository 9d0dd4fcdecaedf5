"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://www.bearssl.org/"
KEYWORDS = "bearssl cffi bindings tls crypto native build pycparser"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="bearssl-sys",
        version="0.1.0",
        description="Fetch, build and generate cffi bindings for BearSSL",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        package_data={"bearssl_sys.bindgen": ["fake_libc/*.h"]},
        include_package_data=True,
        install_requires=[
            "cffi>=1.15",
            "pycparser>=2.21",
            "tqdm>=4.60",
        ],
        extras_require={
            "test": ["pytest>=7.0"],
        },
        entry_points={
            "console_scripts": ["bearssl-sys=bearssl_sys.cli:main"],
        },
    )
