"""
Octomap World Constants and Configuration Values.

All magic numbers are centralized here with clear documentation.
"""

# =============================================================================
# Frames and Image Geometry
# =============================================================================

# Frame every observation and published artifact is expressed in
WORLD_FRAME_DEFAULT = "world"

# Expected full-resolution stereo image size (pixels) until camera info arrives
FULL_IMAGE_WIDTH_DEFAULT = 752
FULL_IMAGE_HEIGHT_DEFAULT = 480

# Flat row-major reprojection matrix supplied through parameters
Q_MATRIX_SIZE = 16

# =============================================================================
# Octomap Engine Defaults
# =============================================================================

RESOLUTION_DEFAULT = 0.15  # Voxel edge length (m)
PROBABILITY_HIT_DEFAULT = 0.65
PROBABILITY_MISS_DEFAULT = 0.4
THRESHOLD_MIN_DEFAULT = 0.12  # Clamping lower bound
THRESHOLD_MAX_DEFAULT = 0.97  # Clamping upper bound
THRESHOLD_OCCUPANCY_DEFAULT = 0.7
FILTER_SPECKLES_DEFAULT = True
SENSOR_MAX_RANGE_DEFAULT = 5.0  # meters; rays are truncated beyond this

# Visualization height band (m); unbounded by default
VISUALIZE_MIN_Z_DEFAULT = -1.0e9
VISUALIZE_MAX_Z_DEFAULT = 1.0e9

# =============================================================================
# Timing
# =============================================================================

# Periodic publish-all rate (Hz); <= 0 disables the timer
MAP_PUBLISH_FREQUENCY_DEFAULT = 0.0

# Minimum spacing between "no camera info yet" warnings (seconds)
DISPARITY_WARN_THROTTLE_SEC = 1.0

# Bounded wait for a single TF lookup (seconds)
TF_TIMEOUT_SEC_DEFAULT = 0.05

# Ingestion status JSON period (seconds); <= 0 disables status publishing
STATUS_PUBLISH_PERIOD_SEC_DEFAULT = 5.0

# =============================================================================
# Topics, Services and Queues
# =============================================================================

LEFT_CAMERA_INFO_TOPIC = "cam0/camera_info"
RIGHT_CAMERA_INFO_TOPIC = "cam1/camera_info"
DISPARITY_TOPIC = "disparity"
POINTCLOUD_TOPIC = "pointcloud"

CAMERA_INFO_QUEUE_DEPTH = 1
OBSERVATION_QUEUE_DEPTH = 40  # disparity and point clouds

OCCUPIED_MARKERS_TOPIC = "~/octomap_occupied"
FREE_MARKERS_TOPIC = "~/octomap_free"
BINARY_MAP_TOPIC = "~/octomap_binary"
FULL_MAP_TOPIC = "~/octomap_full"
INGESTION_STATUS_TOPIC = "~/ingestion_status"

RESET_MAP_SERVICE = "~/reset_map"
PUBLISH_ALL_SERVICE = "~/publish_all"
GET_MAP_SERVICE = "~/get_map"
SAVE_MAP_SERVICE = "~/save_map"
LOAD_MAP_SERVICE = "~/load_map"
SET_BOX_OCCUPANCY_SERVICE = "~/set_box_occupancy"

# Octree identifier carried in serialized map messages
OCTOMAP_ID = "OcTree"
