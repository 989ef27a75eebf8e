from setuptools import find_namespace_packages, setup

setup(
    name="talksubs-backend",
    version="0.1.0",
    package_dir={"": "backend"},
    packages=find_namespace_packages(where="backend", include=["shared*", "services*", "models*"]),
    py_modules=["database", "app"],
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "aiohttp>=3.9",
        "pydantic>=2.5",
        "sqlalchemy>=2.0",
        "alembic>=1.13",
        "psycopg2-binary>=2.9",
        "redis>=5.0",
        "python-dotenv>=1.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.26",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
    description="Backend package for talk subtitles (bilingual rendering and talk catalogue)",
)
