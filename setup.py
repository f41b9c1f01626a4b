from setuptools import find_packages, setup

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name="sparse-dae",
    version="0.1.0",
    description="Sparse BDF solver for differential algebraic equations M x' = f(x, t) with automatic differentiation of the Jacobian.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["examples", "examples.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=["numpy", "scipy", "matplotlib", "jax"],
    extras_require={"test": ["pytest"]},
)
