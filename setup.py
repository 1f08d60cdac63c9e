from setuptools import setup, find_packages

setup(
    name="dl_graph",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "h5py",
        "keras",
        "numpy",
        "pytest",
        "tensorflow",
    ],
    extras_require={
        'dev': ['pylint']
    }
)
