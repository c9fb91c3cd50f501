"""
mutarith: Mutable Arithmetic Dispatch for Python

Generic arithmetic entry points that reuse an operand's storage when the
operand type allows it, and fall back to plain evaluation otherwise:
1. Closed set of operation tags with functional evaluation
2. Type resolution registry predicting result types
3. Mutability oracle gating in-place updates on exact result types
4. Eight-way dispatch lattice (output x buffer x strictness)
5. BigInt reference backend and numpy array backend
"""

from setuptools import setup, find_packages

setup(
    name="mutarith",
    version="0.3.0",
    description="Mutable arithmetic dispatch: in-place numeric operations with safe fallback",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="mutarith developers",
    python_requires=">=3.10",
    packages=find_packages(include=["mutarith", "mutarith.*"]),
    install_requires=[
        "numpy>=1.24.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Software Development :: Libraries",
    ],
)
