from setuptools import setup, find_packages

setup(
    name='gfcli',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.8',
    install_requires=[
        'aiohttp',
        'aiofiles',
        'platformdirs',
        'PyYAML',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'gfcli=gfcli.cli:main',
        ],
    },
    # Include other metadata as needed
)
