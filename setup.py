from setuptools import find_packages
from setuptools import setup


with open("README.md") as fd:
    long_description = fd.read()

setup(
    name="jobs_per_branch",
    provides=["jobs_per_branch"],
    use_scm_version={
        "write_to": "src/jobs_per_branch/_version.py",
        "fallback_version": "0.1.0",
    },
    setup_requires=["setuptools_scm"],
    python_requires=">=3.8",
    install_requires=[
        "attrs",
        "click",
        "flask",
        "gunicorn",
        "python-dotenv",
        "python-jenkins",
        "pyyaml",
        "requests",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-mock",
            "pre-commit",
        ]
    },
    entry_points={"console_scripts": ["jobs_per_branch=jobs_per_branch.cli:jobs_per_branch"]},
    packages=find_packages("src"),
    package_dir={
        "": "src",
    },
    license="MIT",
    description="Keeps Jenkins jobs and views in sync with the branches of a git repository.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="jenkins continuous integration ci jobs job branch git",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development",
    ],
)
