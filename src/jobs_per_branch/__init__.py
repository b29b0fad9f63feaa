def get_version_title():
    from importlib import metadata

    try:
        version = metadata.version("jobs_per_branch")
    except metadata.PackageNotFoundError:
        version = "<N/A>"
    return f"jobs_per_branch ver. {version}"
