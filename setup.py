import setuptools

# Read the long description from README
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

version = "1.0.0"

setuptools.setup(
    name="hostwatch-agent",
    version=version,
    author="HostWatch",
    description="Host registration and metrics agent for HostWatch monitoring servers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Monitoring",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: POSIX :: Linux",
    ],
    packages=["hostwatch_agent"],
    python_requires=">=3.8",
    install_requires=[
        "psutil>=5.8.0",
        "requests>=2.25.0",
        "configparser>=5.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "hostwatch-agent=hostwatch_agent.agent:main",
        ],
    },
)
