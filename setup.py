import re

from setuptools import find_packages, setup

version = re.search('^__version__\\s*=\\s*"(.*)"', open("timerbuilder/__init__.py").read(), re.M).group(1)

setup(
    name="timer-builder",
    version=version,
    description="Cancellable timer streams firing periodically, at specific instants or on custom schedules",
    author="Timer Builder Developers",
    packages=find_packages(include=["timerbuilder", "timerbuilder.*"]),
    install_requires=["arrow", "pyyaml", "dacite", "croniter", "pyhumps", "prometheus-client"],
    extras_require={"tests": ["pytest"]},
    python_requires=">=3.9",
)
