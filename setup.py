import setuptools

with open('README.md') as f:
    data = f.read()

setuptools.setup(
    name='pyickb',
    version='0.1.0',
    license='MIT',
    description='Transaction builder for iCKB deposits and withdrawals on CKB',
    packages=['pyickb'],
    long_description=data,
    long_description_content_type='text/markdown',
    python_requires='>=3.12',
    install_requires=[
        'requests',
        'pytest'
    ],
)
