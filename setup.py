from setuptools import setup, find_packages


setup(
    name="sfrom",
    version="0.1",
    packages=find_packages(),
    description="Reader/writer for Wii U Virtual Console .sfrom ROM containers.",
    author="vercingetorx",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "sfrom=sfrom.cli:main",
        ]
    },
)
