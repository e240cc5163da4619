"""File writers for voxel results."""
