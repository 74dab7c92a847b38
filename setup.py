from setuptools import setup, find_packages

with open("requirements.txt") as f:
    required = f.read().splitlines()

setup(
    name="booksitemap",
    version="0.0.1",
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=required,
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["booksitemap = booksitemap.cli:main"]},
    description="Sitemap discovery and sitemap index generation for book collections",
)
