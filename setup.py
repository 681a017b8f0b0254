"""
Setup script for segrecon package.
"""

from setuptools import setup, find_packages

if __name__ == "__main__":
    setup(
        name='segrecon',
        version='0.1.0',
        description='Reconstruct neurons from stacks of electron microscopy sections',
        author='zyx',
        author_email='yuxiang.jeffrey.zhang@gmail.com',
        packages=find_packages(where="src"),
        package_dir={"": "src"},
        install_requires=[
            'numpy',
            'scipy>=1.9',
            'zarr',
            'tifffile',
            'tqdm',
            'networkx',
        ],
        extras_require={
            'test': ['pytest>=7'],
        },
        entry_points={
            'console_scripts': [
                'segrecon=segrecon.cli.main:main',
            ],
        },
        python_requires='>=3.8',
    )
