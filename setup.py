#!/usr/bin/env python

from setuptools import setup

setup(name='QARM',
      version='0.1',
      description='''This module implements quantitative association rule
                   mining (QARM) in Python.  Rules are conjunctions of
                   numeric intervals predicting that a target attribute falls
                   into an accepted interval.  They are found by a
                   two-objective (support and confidence) evolutionary search
                   embedded in a depth-bounded rule tree search.''',
      license="GNU GPL version 3",
      packages=['qarm'],
      python_requires='>=3.8',
      install_requires=[
          'matplotlib',
          'numpy',
          'pandas',
          'scipy'],
      extras_require={
          'test': ['pytest', 'mock']},
      classifiers=[
          'Development Status :: 4 - Beta',
          'Environment :: Console',
          'Intended Audience :: Education',
          'Intended Audience :: Developers',
          'Intended Audience :: Science/Research',
          'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
          'Operating System :: MacOS :: MacOS X',
          'Operating System :: Microsoft :: Windows',
          'Operating System :: POSIX',
          'Programming Language :: Python',
          'Programming Language :: Python :: 3',
          'Topic :: Scientific/Engineering :: Mathematics',
          'Topic :: Software Development :: Libraries :: Python Modules',
          ],
     )
