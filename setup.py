from setuptools import setup, find_packages

setup(
    name="pyLegoHub",
    version="0.2.0",
    description="Host-side drivers for LEGO WeDo 2.0, PoweredUp, Duplo Train, SPIKE Prime and EV3 hubs.",
    author="tnl2rgn2",
    author_email="tnl2rgn2@example.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "bleak",     # BLE transport (WeDo 2.0, PoweredUp, Duplo Train)
        "pyserial",  # classic Bluetooth serial transport (SPIKE Prime, EV3)
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
