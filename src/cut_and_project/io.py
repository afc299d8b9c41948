"""
Model Input/Output.
Reads and writes superspace models as JSON and writes generated atoms as a
plain text listing.
"""
import json
import logging
from pathlib import Path
from typing import IO, Iterable, Union

import numpy as np

from .config import DEFAULT_SETTINGS, ProjectionSettings
from .errors import ModelError, ModelFormatError
from .models import Atom, AtomSite, OccupationDomain, QuasicrystalModel, SymmetryOperation
from .symmetry import generate_group

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _require(data: dict, key: str, context: str):
    if key not in data:
        raise ModelFormatError(f"Missing '{key}' in {context}")
    return data[key]


def _domain_from_dict(data: dict, context: str) -> OccupationDomain:
    species = _require(data, 'species', context)
    if 'fragments' in data:
        return OccupationDomain(species, tuple(data['fragments']))
    if 'vertices' in data:
        return OccupationDomain.from_vertices(species, data['vertices'])
    raise ModelFormatError(f"{context} needs either 'fragments' or 'vertices'")


def _site_from_dict(data: dict) -> AtomSite:
    label = _require(data, 'label', 'atom site')
    context = f"atom site '{label}'"
    domains = tuple(
        _domain_from_dict(od, f"occupation domain of {context}")
        for od in _require(data, 'occupation_domains', context)
    )
    return AtomSite(label, _require(data, 'pos_fract', context), domains)


def model_from_dict(data: dict, settings: ProjectionSettings = DEFAULT_SETTINGS) -> QuasicrystalModel:
    """Build a model from its JSON-compatible dictionary.

    Args:
        data: Dictionary with ``a_par_cartn``, ``a_perp_cartn``, ``atom_sites``
            and optionally ``dim``, ``origin_fract``, ``symmetry_operations``
            and ``symmetry_generators``
        settings: Supplies the maximum group order and symmetry tolerance

    Returns:
        QuasicrystalModel

    Raises:
        ModelFormatError: If required keys are missing or values malformed
        ModelError: If the model is inconsistent
    """
    if not isinstance(data, dict):
        raise ModelFormatError("Model must be a JSON object")
    try:
        a_par = np.asarray(_require(data, 'a_par_cartn', 'model'), dtype=float)
        a_perp = np.asarray(data.get('a_perp_cartn', []), dtype=float)
        ops = [
            SymmetryOperation(_require(op, 'rot', 'symmetry operation'),
                              _require(op, 'trans', 'symmetry operation'))
            for op in data.get('symmetry_operations', [])
        ]
        sites = tuple(_site_from_dict(s) for s in data.get('atom_sites', []))
    except ModelError:
        raise
    except (TypeError, ValueError) as e:
        raise ModelFormatError(f"Malformed model: {e}") from e

    if 'dim' in data and np.atleast_2d(a_par).shape[1] != data['dim']:
        raise ModelError(
            f"Declared dim {data['dim']} does not match a_par_cartn of shape {a_par.shape}"
        )
    if ops and data.get('symmetry_generators', False):
        ops = generate_group(ops, settings.max_group_order, settings.symmetry_tol)

    model = QuasicrystalModel(
        a_par_cartn=a_par,
        a_perp_cartn=a_perp,
        atom_sites=sites,
        symmetry_operations=tuple(ops),
        origin_fract=data.get('origin_fract'),
    )
    logger.debug(
        "Loaded %dD model (%d+%d) with %d sites and %d symmetry operations",
        model.dim, model.dim_par, model.dim_perp,
        len(model.atom_sites), len(model.symmetry_operations),
    )
    return model


def model_to_dict(model: QuasicrystalModel) -> dict:
    """Serialize a model; the full group is written, not its generators."""
    return {
        'dim': model.dim,
        'a_par_cartn': model.a_par_cartn.tolist(),
        'a_perp_cartn': model.a_perp_cartn.tolist(),
        'origin_fract': model.origin_fract.tolist(),
        'symmetry_operations': [op.to_dict() for op in model.symmetry_operations],
        'symmetry_generators': False,
        'atom_sites': [site.to_dict() for site in model.atom_sites],
    }


def load_model(path: PathLike, settings: ProjectionSettings = DEFAULT_SETTINGS) -> QuasicrystalModel:
    """Read a JSON model file."""
    logger.info(f"Loading model from: {path}")
    with open(path, encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ModelFormatError(f"Invalid JSON in {path}: {e}") from e
    return model_from_dict(data, settings)


def dump_model(model: QuasicrystalModel, path: PathLike) -> None:
    """Write a model as JSON."""
    logger.info(f"Saving model to: {path}")
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(model_to_dict(model), f, indent=2)


def format_atom(atom: Atom, precision: int = 10) -> str:
    """``<species> <x> <y> ...`` line for one atom."""
    coords = ' '.join(f"{c:.{precision}g}" for c in atom.r_par)
    return f"{atom.species} {coords}" if coords else atom.species


def write_atoms(atoms: Iterable[Atom], stream: IO[str], comment: str = '', precision: int = 10) -> int:
    """Write the atom count, a comment line and one line per atom.

    Returns:
        Number of atoms written
    """
    atoms = list(atoms)
    stream.write(f"{len(atoms)}\n")
    stream.write(f"{comment}\n")
    for atom in atoms:
        stream.write(format_atom(atom, precision) + "\n")
    return len(atoms)
