"""
Installs serofoi
"""

import re

from setuptools import find_packages, setup


# Get package information
def get_package_info():
    """
    Gets version information for the installation.
    """
    # Set up variables
    package_version = None

    # Open the file containing version info
    with open("serofoi/__init__.py", "r", encoding="utf-8") as file:
        for line in file:
            # Check version
            if match_obj := re.match(r"__version__.+([0-9]+\.[0-9]+\.[0-9]+)", line):
                package_version = match_obj.group(1)

    # Checks on variables
    if package_version is None:
        raise IOError("Could not find information on version.")

    return package_version


# Run setup
setup(
    name="serofoi",
    version=get_package_info(),
    description="Bayesian estimation of the force-of-infection from serosurveys",
    packages=find_packages(include=["serofoi", "serofoi.*"]),
    package_data={
        "serofoi.model.stan": ["*.stan", "*.stanfunctions", "*.standata"],
    },
    python_requires=">=3.10",
    install_requires=[
        "arviz>=0.17,<1.0",
        "cmdstanpy>=1.2",
        "numpy",
        "pandas",
        "scipy",
        "tqdm",
        "typeguard>=4",
    ],
    extras_require={"test": ["pytest"]},
)
