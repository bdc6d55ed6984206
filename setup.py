import sys
from pathlib import Path

from setuptools import setup, find_namespace_packages

if sys.version_info[0:2] < (3, 10):
    raise RuntimeError("This package requires Python 3.10+.")

setup(
    name="moat-lib-quickpid",
    version="0.1.0",
    packages=find_namespace_packages(include=['moat.lib.quickpid', 'moat.lib.quickpid.*']),
    url="https://github.com/M-o-a-T/moat",
    license="MIT",
    author="Matthias Urlichs",
    author_email="<matthias@urlichs.de>",
    description="A sampled PID controller with bumpless transfer and selectable anti-windup",
    long_description=Path(__file__).with_name("README.rst").read_text(encoding="utf-8"),
    install_requires=["moat-util", "moat-lib-codec==0.4.7", ],
    extras_require={
        "test": ["pytest", "numpy"],
        "examples": ["matplotlib"],
    },
    python_requires=">=3.10",
    classifiers=[
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
        "Intended Audience :: Developers",
        "License :: OSI Approved",
    ],
)
