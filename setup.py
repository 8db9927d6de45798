import os
import re

from setuptools import setup


def get_version():
    module_init = 'grundig1/version.py'

    if not os.path.isfile(module_init):
        module_init = '../' + module_init
        if not os.path.isfile(module_init):
            raise ValueError('Unable to determine version!')

    with open(module_init) as version_file:
        return re.search(r'__version__\s*=\s*[\'"]([^\'"]*)[\'"]',
                         version_file.read()).group(1)


setup(name='grundig1',
      version=get_version(),
      description='Client-side state sync engine for the Grundig1 DSP console',
      author='Grundig1 Developers',
      license='LGPL',
      python_requires='>=3.10',
      packages=['grundig1', 'grundig1.client', 'grundig1.client.commands'],
      entry_points={
          'console_scripts': [
              'grundig1 = grundig1.client.main:cli_entry',
          ]
      },
      install_requires=['colorlog', 'frozendict', 'requests', 'ruamel.yaml',
                        'traitlets', 'websockets', 'wrapt'],
      extras_require={
          'test': ['pytest'],
      },
      keywords='grundig1 dsp audio console crossover equalizer',
      include_package_data=True,
      zip_safe=False,
      classifiers=[
          'Development Status :: 3 - Alpha',
          'Environment :: Console',
          'Intended Audience :: End Users/Desktop',
          'License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)',
          'Operating System :: OS Independent',
          'Programming Language :: Python :: 3 :: Only',
          'Topic :: Multimedia :: Sound/Audio :: Mixers'
      ])
