from setuptools import setup, find_packages

setup(name='ktcsv',
      version='0.1.0',
      description='Structural CSV parser for Python',
      packages=find_packages(exclude=['tests', 'tests.*', 'scripts']),
      python_requires='>=3.8',
      install_requires=[
          'numpy',
          'loguru',
      ],
      extras_require={
          'test': ['pytest'],
          'bench': ['pandas', 'polars'],
      },
      zip_safe=False)
