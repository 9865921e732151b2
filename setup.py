from setuptools import setup, find_packages

setup(
    name             = 'merch-watch',
    version          = '1.2.0',
    description      = 'Merch Watch — open PID queries and SLA breaches from WhatsApp chat exports',
    author           = 'Merch Watch maintainers',
    packages         = find_packages(exclude=['tests*']),
    install_requires = open('requirements.txt').read().splitlines(),
    extras_require   = {
        'test': ['pytest>=7', 'httpx>=0.24'],
    },
    entry_points     = {
        'console_scripts': [
            'merchwatch     = merchwatch.cli:main',
            'merchwatch-api = merchwatch.api:main',
        ],
    },
    python_requires  = '>=3.10',
    classifiers      = [
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)
