"""I/O functions for domains, trees and forest reports."""

from .serialize import save_json, load_json
from .domain_file import read_domain_file, write_domain_file
from .vtk import save_vtk, save_csv
from .reports import save_attained_flow, save_volumes

__all__ = [
    "save_json",
    "load_json",
    "read_domain_file",
    "write_domain_file",
    "save_vtk",
    "save_csv",
    "save_attained_flow",
    "save_volumes",
]
