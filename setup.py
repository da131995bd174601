#!/usr/bin/env python3
"""
Setup configuration for m3u-sync
Keeps local M3U playlists in step with Spotify playlists
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "spotipy>=2.22.1",
    "rapidfuzz>=3.0.0",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "rich>=13.0.0",
    "tqdm>=4.66.1",
    "pyyaml>=6.0.1",
    "python-dotenv>=1.0.0",
]

setup(
    name="m3u-sync",
    version="0.1.0",
    author="m3u-sync",
    description="Match Spotify playlists against a local music library and maintain M3U playlists",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
        ],
    },
    entry_points={
        "console_scripts": [
            "m3u-sync=m3u_sync.cli:main",
        ],
    },
    keywords="spotify m3u playlist music library sync cli",
)
