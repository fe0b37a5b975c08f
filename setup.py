import os
from glob import glob

from setuptools import find_packages, setup

package_name = 'patrol_mission'
launch_files = glob('launch/*.py')
param_files = glob('param/*.yaml')
mission_files = glob('missions/*.yaml')
pddl_files = glob('pddl/*.pddl')

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages(exclude=['test', 'test.*']),
    data_files=[
        ('share/ament_index/resource_index/packages', ['resource/' + package_name]),
        (os.path.join('share', package_name), ['package.xml']),
        (os.path.join('share', package_name, 'launch'), launch_files),
        (os.path.join('share', package_name, 'param'), param_files),
        (os.path.join('share', package_name, 'missions'), mission_files),
        (os.path.join('share', package_name, 'pddl'), pddl_files),
    ],
    install_requires=['setuptools', 'PyYAML'],
    zip_safe=True,
    maintainer='Patrol Mission Maintainers',
    maintainer_email='patrol-mission@example.org',
    description='PlanSys2 patrol mission orchestrator with a Nav2-backed move action.',
    license='Apache-2.0',
    tests_require=['pytest'],
    extras_require={'test': ['pytest']},
    entry_points={
        'console_scripts': [
            'patrol_controller = patrol_mission.nodes.patrol_controller_node:main',
            'move_action = patrol_mission.nodes.move_action_node:main',
        ],
    },
)
