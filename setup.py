# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Setup configuration for azurekv."""

from setuptools import find_packages, setup

setup(
    name="azurekv",
    version="0.1.0",
    description="Write-only Azure Key Vault secret reconciliation for infrastructure-as-code tools",
    author="azurekv contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        # Core reconciliation logic is stdlib only; the Azure SDK is an extra
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
        "azure": [
            "azure-core>=1.29.0",
            "azure-keyvault-secrets>=4.7.0",
            "azure-identity>=1.16.1",
            "azure-mgmt-resource>=23.0.0",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
