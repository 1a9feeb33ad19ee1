"""Set-up file for PoreFlash for installations usins ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()


setup(
    name="poreflash",
    version="0.1.0",
    license="GPL",
    keywords=["porous media multiphase multicomponent flash phase equilibrium"],
    install_requires=required,
    extras_require={"testing": ["pytest"]},
    description=(
        "Phase equilibrium calculations and primary variable mappings for"
        + " multiphase, multicomponent flow in porous media"
    ),
    platforms=["Linux", "Windows", "Mac OS-X"],
    package_data={
        "poreflash": ["py.typed"],
    },
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    zip_safe=False,
)
