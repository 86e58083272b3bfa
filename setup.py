# For printing messages, use:
#    pip install . --verbose
# or
#    pip install . -v

import setuptools

# Set long_description
with open("README.md", "r") as file_handle:
    long_description = file_handle.read()

# Load version
__version__ = '0.0.0' # default
with open('src/dgsim/_version.py', 'r') as f:
    exec(f.read())

setuptools.setup(
    name='dgsim',
    version=__version__,
    description='Direct (LU) Gaussian simulation and cosimulation',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=['dgsim'],
    package_dir={'dgsim':'src/dgsim'},
    python_requires='>=3.8',
    install_requires=['numpy', 'pandas', 'scipy'],
    extras_require={'test':['pytest']},
)
