"""
gbcore - Game Boy emulator core - setup

Pure-Python install by default. Set GBCORE_CYTHONIZE=1 to compile the hot
modules with Cython (they use pure-Python-mode `cython` annotations).
"""
import os

from setuptools import setup, find_packages

compiler_directives = {
    "boundscheck": False,
    "cdivision": True,
    "wraparound": False,
    "infer_types": True,
    "initializedcheck": False,
    "nonecheck": False,
    "overflowcheck": False,
    "language_level": "3",
}

# Compiled in order of payoff
modules_to_compile = [
    "src/gbcore/timer.py",
    "src/gbcore/alu.py",
    # "src/gbcore/cpu.py",   # closures in the dispatch tables; profile first
]


def extension_modules():
    if os.environ.get("GBCORE_CYTHONIZE") != "1":
        return []
    from Cython.Build import cythonize
    return cythonize(
        modules_to_compile,
        compiler_directives=compiler_directives,
        annotate=True,
    )


setup(
    name="gbcore",
    version="0.1.0",
    description="Game Boy (DMG) emulator core with optional Cython optimization",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "Cython",
    ],
    extras_require={
        "display": ["pygame"],
        "test": ["pytest"],
    },
    ext_modules=extension_modules(),
    zip_safe=False,
)
