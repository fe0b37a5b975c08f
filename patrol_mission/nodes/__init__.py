"""ROS 2 entry points for the patrol mission."""
