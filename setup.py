"""
Provides project-level commands. Commands are run via `python setup.py <command> [args]`

Commands available:

- doctest: runs the doctests embedded in the module docstrings
"""

from setuptools import setup, Command

import os


class RunInRootCommand(Command):
    user_options = []

    def initialize_options(self):
        self.cwd = None

    def finalize_options(self):
        self.cwd = os.getcwd()

    def run(self):
        assert os.getcwd() == self.cwd, 'Must be in package root: %s' % self.cwd
        self.runcmd()

    def runcmd(self):
        pass


class DocTestCommand(RunInRootCommand):
    description = "runs the doctests in the serverquery package"

    def runcmd(self):
        os.system('"pytest" --doctest-modules src/serverquery')


setup(
    name='serverquery-connector-py',
    version='0.1.0',
    description='A client for the TeamSpeak 3 ServerQuery protocol over TCP and SSH.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['serverquery', 'serverquery.conduit', 'serverquery.config', 'serverquery.connector',
              'serverquery.protocol', 'serverquery.support'],
    python_requires='>=3.6',
    install_requires=[
        'configobj>=5.0.6',
        'paramiko>=2.4',
    ],
    extras_require={
        'test': [
            'PyHamcrest>=1.9',
            'timeout-decorator>=0.4',
            'pytest>=3.0',
        ],
    },
    zip_safe=False,
    cmdclass={
        'doctest': DocTestCommand,
    }
)
