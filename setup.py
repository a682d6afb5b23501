from setuptools import setup, find_packages


setup(name='vocam',
      version='1.0.0',
      description='Run time selectable camera models for visual odometry',
      packages=find_packages(include=['vocam', 'vocam.*']),
      python_requires='>=3.10',
      install_requires=['numpy', 'scipy'],
      extras_require={'test': ['pytest']})
