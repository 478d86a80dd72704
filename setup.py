from setuptools import setup, find_packages

# Don't import mach5 itself here; attrs may not be installed yet.
about = {}
with open("mach5/_version.py") as fp:
    exec(fp.read(), about)

setup(
    name="mach5",
    version=about["__version__"],
    description=
        "Rename imported symbols in Mach-O object files",
    long_description=open("README.rst").read(),
    license="GPLv2+",
    packages=find_packages(),
    install_requires=[
        "attrs",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
        "Programming Language :: Python :: 3",
        "Operating System :: MacOS :: MacOS X",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Software Development :: Compilers",
        ],
)
