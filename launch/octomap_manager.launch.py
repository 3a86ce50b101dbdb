from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node

from octomap_world.config import get_default_config_path


def generate_launch_description():
    default_config = str(get_default_config_path())
    config_path = LaunchConfiguration("config_path")
    map_engine = LaunchConfiguration("map_engine")
    use_sim_time = LaunchConfiguration("use_sim_time")
    tf_frame = LaunchConfiguration("tf_frame")
    map_publish_frequency = LaunchConfiguration("map_publish_frequency")

    return LaunchDescription(
        [
            DeclareLaunchArgument("config_path", default_value=default_config),
            DeclareLaunchArgument(
                "map_engine",
                description="Map engine plugin, 'package.module:ClassName'",
            ),
            DeclareLaunchArgument("use_sim_time", default_value="false"),
            DeclareLaunchArgument("tf_frame", default_value="world"),
            DeclareLaunchArgument("map_publish_frequency", default_value="0.0"),
            DeclareLaunchArgument("disparity_topic", default_value="disparity"),
            DeclareLaunchArgument("pointcloud_topic", default_value="pointcloud"),
            Node(
                package="octomap_world",
                executable="octomap_manager_node",
                name="octomap_manager",
                output="screen",
                emulate_tty=True,
                parameters=[
                    config_path,
                    {
                        "use_sim_time": use_sim_time,
                        "map_engine": map_engine,
                        "tf_frame": tf_frame,
                        "map_publish_frequency": map_publish_frequency,
                    },
                ],
                remappings=[
                    ("disparity", LaunchConfiguration("disparity_topic")),
                    ("pointcloud", LaunchConfiguration("pointcloud_topic")),
                ],
            ),
        ]
    )
