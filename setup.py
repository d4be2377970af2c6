from setuptools import setup, find_packages

setup(
    name='vpkit',
    version='0.3.0',

    package_dir={'': 'src'},
    packages=find_packages(where='src'),

    install_requires=[
        'termcolor>=1',
        'colorama>=0.4.6, <2',
        'jsonschema>=3',
    ],

    extras_require={
        'test': [
            'pytest',
        ],
    },

    entry_points={
        'console_scripts': [
            'vpkit = vpkit.cli:main',
        ],
    },

    zip_safe=True,

    description="Readers for VP archive containers and 8-bit PCX images, with a command-line browser",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Topic :: System :: Archiving",
        "Topic :: Multimedia :: Graphics",
        "Typing :: Typed",
    ],
    python_requires='>=3.8',
)
