from setuptools import find_packages, setup


with open('requirements.txt', encoding='utf-8') as requirements_file:
    requirements = [line.strip() for line in requirements_file if line.strip() and not line.startswith('#')]


setup(
    name='github-notion-project-sync',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    python_requires='>=3.9',
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.4', 'responses>=0.24', 'httpx>=0.25'],
    },
    entry_points={
        'console_scripts': [
            'project-sync=project_sync.cli:main',
            'project-sync-server=project_sync.server:main',
        ],
    },
    description='Mirror GitHub Projects (v2) items into a Notion database',
)
