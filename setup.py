from setuptools import find_packages, setup

package_name = "octomap_world"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test"]),
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (
            "share/" + package_name + "/launch",
            [
                "launch/octomap_manager.launch.py",
            ],
        ),
        (
            "share/" + package_name + "/config",
            [
                "config/octomap_manager.yaml",
            ],
        ),
    ],
    install_requires=["setuptools", "numpy", "scipy", "pyyaml", "pydantic>=2"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="octomap_world maintainers",
    maintainer_email="maintainer@example.com",
    description="Sensor ingestion and calibration coordinator for an online octomap (ROS 2)",
    license="BSD-3-Clause",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "octomap_manager_node = octomap_world.ros.manager_node:main",
        ],
    },
)
