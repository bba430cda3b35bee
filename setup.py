from setuptools import setup, find_packages

with open('requirements.txt') as f:
    required = f.read().splitlines()

setup(
    name='seafload',
    version='0.1.0',
    license="MIT",
    description='A simple package to list and download files from Seafile share links',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.11',
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=required,
    extras_require={
        'test': ['pytest'],
    },
    entry_points = {
        'console_scripts': ['seafload=seafload.seafload:main'],
    }
)
