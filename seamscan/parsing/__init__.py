from seamscan.parsing.snapshot import load_snapshot, tree_from_dict

__all__ = ["load_snapshot", "tree_from_dict"]
