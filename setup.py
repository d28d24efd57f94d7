from setuptools import find_packages, setup

setup(
    name="ci-deployer",
    version="0.1.0",
    packages=find_packages(
        include=[
            "deploy_common",
            "deploy_common.*",
            "deploy_jenkins",
            "deploy_jenkins.*",
            "deploy_server",
            "deploy_server.*",
            "deploy_client",
            "deploy_client.*",
            "deploy_admin",
            "deploy_admin.*",
        ]
    ),
    package_data={"deploy_jenkins": ["templates/*.j2"]},
    install_requires=[
        "requests>=2.31.0",
        "fastapi>=0.104.0",
        "uvicorn>=0.24.0",
        "click>=8.1.0",
        "httpx>=0.25.0",
        "jinja2>=3.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-xdist>=3.3.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "deploy=deploy_client.cli:main",
            "deploy-server=deploy_server.__main__:main",
            "deploy-admin=deploy_admin.cli:cli",
        ],
    },
    python_requires=">=3.10",
)
