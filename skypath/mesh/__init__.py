from skypath.mesh.flat_mesh import FlatMesh, DEGENERATE_AREA

__all__ = ["FlatMesh", "DEGENERATE_AREA"]
