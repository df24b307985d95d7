from setuptools import setup, find_packages

setup(
    name="spanreed",
    version="0.1.0",
    description="Redis task-queue bridge serving vault commands",
    packages=find_packages(include=["spanreed", "spanreed.*"]),
    python_requires=">=3.10",
    install_requires=[
        "redis>=5.0.1",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.3.0",
            "fakeredis>=2.20",
            "black",
            "ruff",
        ]
    },
    entry_points={
        "console_scripts": [
            "spanreed-bridge = spanreed.__main__:main",
        ]
    },
    include_package_data=True,
    zip_safe=False,
)
