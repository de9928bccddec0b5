from setuptools import setup

setup(
    name="spviz",
    version="0.1",
    description="FCC lattice proton-trajectory viewer with stopping-power prediction",
    packages=["spviz"],
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "matplotlib",
        "plotly",
        "streamlit>=1.37",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["spviz=spviz.gui:main"],
    },
)
