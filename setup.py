from setuptools import setup, find_packages

package_name = 'sensor_gateway'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.10',
    install_requires=[
        'setuptools',
        'fastapi>=0.104.0',
        'pydantic>=2.0',
        'uvicorn>=0.24.0',
        'websockets>=12.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-asyncio>=0.21',
            'httpx>=0.24',
        ],
    },
    zip_safe=True,
    description='Bridge between a web control panel and a WebSocket sensor/actuator node',
    license='MIT',
    entry_points={
        'console_scripts': [
            'sensor_gateway = sensor_gateway.main:main',
        ],
    },
)
