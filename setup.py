from setuptools import find_namespace_packages, setup

setup(
    name="lpt-tube",
    version="0.1.0",
    description="Classical laminate theory and molded composite tube calculations",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["lpt_tube*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "scipy",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "lpt-tube-report=lpt_tube.cli.tube_report:main",
        ],
    },
)
