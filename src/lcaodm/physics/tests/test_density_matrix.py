# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
from __future__ import annotations

import numpy as np
import pytest

from lcaodm import (
    Atom,
    BrillouinZone,
    DensityMatrix,
    DimensionMismatchError,
    DimensionMismatchWarning,
    Geometry,
    InvalidConfigError,
    Lattice,
    MissingSnapshotInfo,
    NeighborList,
    OwnershipViolation,
    ParallelOrbitals,
    SparseBlockMatrix,
    ValidationError,
    find_neighbors,
)
from lcaodm._environ import lcaodm_environ
from lcaodm.physics._dm_transform import transform

pytestmark = [pytest.mark.physics, pytest.mark.densitymatrix]


def _fill(dm, seed=42):
    rng = np.random.default_rng(seed)
    for buf in dm.get_DMK_vector():
        if np.iscomplexobj(buf):
            buf[:] = rng.random(buf.size) + 1j * rng.random(buf.size)
        else:
            buf[:] = rng.random(buf.size)


def _k(dm, ispin):
    if dm.is_gamma:
        return np.zeros([1, 3])
    nks = dm.nks
    return dm.get_kv_pointer().k[nks * (ispin - 1) : nks * ispin]


def _expected(dm, pair, R, ispin=1):
    """Direct sum over k of the column-major k-space sub-blocks"""
    paraV = dm.get_paraV_pointer()
    nrow, ncol = paraV.nrow, paraV.ncol
    out = np.zeros([pair.row_size, pair.col_size], dtype=np.complex128)
    for ik, k in enumerate(_k(dm, ispin)):
        M = dm.get_DMK_pointer(dm.nks * (ispin - 1) + ik).reshape(ncol, nrow).T
        sub = M[
            pair.row_ap : pair.row_ap + pair.row_size,
            pair.col_ap : pair.col_ap + pair.col_size,
        ]
        out += np.exp(2j * np.pi * np.dot(k, R)) * sub
    if dm.dtype.kind != "c":
        return out.real
    return out


def _assert_expected(dm):
    for ispin in range(1, dm.nspin + 1):
        for pair in dm.get_DMR_pointer(ispin):
            for R, block in pair:
                assert np.allclose(block.data, _expected(dm, pair, R, ispin), atol=1e-10)


@pytest.mark.parametrize("nspin,nbuffers", [(1, 3), (2, 6), (4, 3)])
def test_dm_buffer_count_k(lcaodm_system, nspin, nbuffers):
    bz = lcaodm_system.bz
    if nspin == 2:
        bz = bz.spin_duplicate()
    dm = DensityMatrix(bz, lcaodm_system.paraV, nspin)
    assert dm.get_DMK_nks() == nbuffers
    assert dm.nks == 3
    assert not dm.is_gamma
    for buf in dm.get_DMK_vector():
        assert buf.dtype == np.complex128
        assert buf.size == dm.get_DMK_nrow() * dm.get_DMK_ncol()
        assert np.allclose(buf, 0)


@pytest.mark.parametrize("nspin,nbuffers", [(1, 1), (2, 2), (4, 1)])
def test_dm_buffer_count_gamma(lcaodm_system, nspin, nbuffers):
    dm = DensityMatrix.gamma(lcaodm_system.paraV, nspin)
    assert dm.get_DMK_nks() == nbuffers
    assert dm.nks == 1
    assert dm.is_gamma
    assert dm.get_kv_pointer() is None
    for buf in dm.get_DMK_vector():
        assert buf.dtype == np.float64


def test_dm_invalid_spin(lcaodm_system):
    with pytest.raises(InvalidConfigError):
        DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 3)
    with pytest.raises(InvalidConfigError):
        DensityMatrix.gamma(lcaodm_system.paraV, 0)


def test_dm_odd_k_polarized(lcaodm_system):
    with pytest.raises(InvalidConfigError):
        DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 2)


def test_dm_invalid_dtype(lcaodm_system):
    with pytest.raises(TypeError):
        DensityMatrix.gamma(lcaodm_system.paraV, 1, dtype=np.complex128)


def test_dm_init_DMR(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors, lcaodm_system.g)
    assert len(dm.DMR) == 1
    DMR = dm.get_DMR_pointer(1)
    assert DMR.size_atom_pairs() == 4
    assert DMR.nnz == 24
    assert np.allclose(DMR.data, 0)
    assert DMR.find_matrix(0, 1, (-1, 0, 0)) is not None
    assert DMR.find_matrix(1, 0, (1, 0, 0)) is not None
    assert DMR.find_matrix(0, 0, (1, 0, 0)) is None


def test_dm_init_DMR_polarized(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz.spin_duplicate(), lcaodm_system.paraV, 2)
    dm.init_DMR(lcaodm_system.neighbors, lcaodm_system.g)
    DMR1, DMR2 = dm.DMR
    assert DMR1.nnz == DMR2.nnz
    for p1, p2 in zip(DMR1, DMR2):
        assert p1.identity == p2.identity
        assert [R for R, _ in p1] == [R for R, _ in p2]
    DMR2.data[:] = 1.0
    assert np.allclose(DMR1.data, 0)


def test_dm_init_DMR_again(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors)
    old = dm.DMR[0]
    dm.init_DMR(lcaodm_system.neighbors)
    assert dm.DMR[0] is not old
    assert len(dm.DMR) == 1


def test_dm_init_DMR_records(lcaodm_system):
    g = lcaodm_system.g
    # (Rx, Ry, Rz, species, index in species)
    records = [
        [(0, 0, 0, 0, 0), (0, 0, 0, 0, 1), (-1, 0, 0, 0, 1)],
        [(0, 0, 0, 0, 0), (0, 0, 0, 0, 1), (1, 0, 0, 0, 0)],
    ]
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(records, g)
    ref = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    ref.init_DMR(lcaodm_system.neighbors, g)
    for p1, p2 in zip(dm.DMR[0], ref.DMR[0]):
        assert p1.identity == p2.identity
        assert sorted(R for R, _ in p1) == sorted(R for R, _ in p2)


def test_dm_init_DMR_wrong_atoms(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    nl = NeighborList(1, [[0, 0, 0, 0, 0]])
    with pytest.raises(ValueError):
        dm.init_DMR(nl, lcaodm_system.g)


def test_dm_cal_DMR_no_init(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    with pytest.raises(ValueError):
        dm.cal_DMR()


@pytest.mark.transform
@pytest.mark.parametrize("dtype", [np.float64, np.complex128])
def test_dm_cal_DMR_k(lcaodm_system, dtype):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1, dtype)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    assert dm.DMR[0].dtype == dtype
    _assert_expected(dm)


@pytest.mark.transform
def test_dm_cal_DMR_gamma(lcaodm_system):
    dm = DensityMatrix.gamma(lcaodm_system.paraV, 1, validate=True)
    dm.init_DMR(lcaodm_system.neighbors)
    DMR = dm.DMR[0]
    assert DMR.is_gamma
    for pair in DMR:
        assert pair.get_R_size() == 1
        assert pair.find_R((0, 0, 0)) == 0
    _fill(dm)
    dm.cal_DMR()
    _assert_expected(dm)


@pytest.mark.transform
@pytest.mark.parametrize("dtype", [np.float64, np.complex128])
def test_dm_reference(lcaodm_system, dtype):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1, dtype)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    fast = dm.DMR[0].data.copy()
    dm.cal_DMR_test()
    assert np.allclose(fast, dm.DMR[0].data, atol=1e-10)


@pytest.mark.transform
def test_dm_reference_gamma(lcaodm_system):
    dm = DensityMatrix.gamma(lcaodm_system.paraV, 2)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.transform_to_real()
    fast = [DMR.data.copy() for DMR in dm.DMR]
    dm.transform_to_real_reference()
    for f, DMR in zip(fast, dm.DMR):
        assert np.allclose(f, DMR.data, atol=1e-10)


@pytest.mark.transform
def test_dm_idempotent(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    first = dm.DMR[0].data.copy()
    dm.cal_DMR()
    assert np.array_equal(first, dm.DMR[0].data)


@pytest.mark.transform
def test_transform_no_kpoints(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors)
    DMR = dm.get_DMR_pointer(1)
    DMR.data[:] = 1.0
    transform(DMR, [], np.zeros([0, 3]), dm.get_paraV_pointer())
    assert np.array_equal(DMR.data, np.zeros(DMR.nnz))


@pytest.mark.transform
def test_dm_gamma_equivalence(lcaodm_system):
    paraV = lcaodm_system.paraV
    dm_k = DensityMatrix(BrillouinZone(lcaodm_system.lattice), paraV, 1)
    dm_g = DensityMatrix.gamma(paraV, 1)
    dm_k.init_DMR(lcaodm_system.neighbors)
    dm_g.init_DMR(lcaodm_system.neighbors)

    rng = np.random.default_rng(1)
    values = rng.random(paraV.nloc)
    dm_k.set_DMK_pointer(0, values)
    dm_g.set_DMK_pointer(0, values)
    dm_k.cal_DMR()
    dm_g.cal_DMR()

    for pair in dm_g.DMR[0]:
        block_k = dm_k.DMR[0].find_matrix(pair.iat1, pair.iat2, (0, 0, 0))
        block_g = pair.find_matrix((0, 0, 0))
        assert np.allclose(block_k.data, block_g.data, atol=1e-10)


@pytest.mark.transform
def test_dm_polarized_k(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz.spin_duplicate(), lcaodm_system.paraV, 2)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    _assert_expected(dm)
    assert not np.allclose(dm.DMR[0].data, dm.DMR[1].data)


@pytest.mark.transform
def test_dm_noncolinear(lcaodm_system):
    paraV = ParallelOrbitals.from_geometry(lcaodm_system.g, npol=2)
    dm = DensityMatrix(lcaodm_system.bz, paraV, 4, np.complex128)
    assert dm.nspin == 1
    dm.init_DMR(lcaodm_system.neighbors)
    assert dm.DMR[0].get_atom_pair(0, 0).get_matrix(0).shape == (4, 4)
    _fill(dm)
    dm.cal_DMR()
    _assert_expected(dm)


def test_dm_merge_spin(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz.spin_duplicate(), lcaodm_system.paraV, 2)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    up = dm.DMR[0].data.copy()
    down = dm.DMR[1].data.copy()
    dm.sum_DMR_spin()
    assert np.allclose(dm.DMR[0].data, up + down)
    assert np.allclose(dm.DMR[1].data, down)


def test_dm_merge_spin_unpolarized(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors)
    _fill(dm)
    dm.cal_DMR()
    before = dm.DMR[0].data.copy()
    dm.merge_spin()
    assert np.allclose(dm.DMR[0].data, before)


def test_dm_end_to_end_gamma(lcaodm_system):
    g = lcaodm_system.g
    paraV = ParallelOrbitals.from_geometry(g)
    # self-pair and cross-pair in the unit-cell only
    records = [[(0, 0, 0, 0), (0, 0, 0, 1)], [(0, 0, 0, 1)]]

    dm = DensityMatrix(BrillouinZone(lcaodm_system.lattice), paraV, 1)
    dm.init_DMR(records)
    assert dm.DMR[0].size_atom_pairs() == 3
    for pair in dm.DMR[0]:
        assert (pair.row_size, pair.col_size) == (2, 2)

    # element (r, c) of the column-major buffer
    nrow = paraV.nrow
    pattern = np.array(
        [10 * r + c for c in range(paraV.ncol) for r in range(nrow)], dtype=np.float64
    )
    dm.set_DMK_pointer(0, pattern)
    dm.cal_DMR()

    M = pattern.reshape(paraV.ncol, nrow).T
    for (i, j) in [(0, 0), (0, 1), (1, 1)]:
        block = dm.DMR[0].find_matrix(i, j, (0, 0, 0))
        assert np.array_equal(block.data, M[2 * i : 2 * i + 2, 2 * j : 2 * j + 2])
    csr = dm.DMR[0].tocsr()
    assert csr[0, 3] == M[0, 3]
    assert csr[3, 0] == 0


@pytest.mark.parametrize("coord", [(0, 0), (1, 0)])
@pytest.mark.parametrize("nb", [1, 2])
def test_dm_distributed(lcaodm_system, nb, coord):
    paraV = ParallelOrbitals.from_geometry(
        lcaodm_system.g, nb=nb, grid=(2, 1), coord=coord
    )
    assert paraV.nrow == 2
    assert paraV.ncol == 4
    dm = DensityMatrix(lcaodm_system.bz, paraV, 1)
    dm.init_DMR(lcaodm_system.neighbors)
    for pair in dm.DMR[0]:
        assert paraV.get_row_size(pair.iat1) > 0
        assert paraV.get_col_size(pair.iat2) > 0
    if nb == 2:
        # each process holds all rows of a single atom
        assert dm.DMR[0].size_atom_pairs() == 2
        assert {pair.iat1 for pair in dm.DMR[0]} == {coord[0]}
    else:
        assert dm.DMR[0].size_atom_pairs() == 4
    _fill(dm)
    dm.cal_DMR()
    _assert_expected(dm)
    fast = dm.DMR[0].data.copy()
    dm.cal_DMR_test()
    assert np.allclose(fast, dm.DMR[0].data, atol=1e-10)


@pytest.fixture(scope="module")
def mixed_chain():
    """5 atoms of two species with 2 and 3 orbitals, nearest neighbors only"""
    A = Atom(1, no=2, R=0.8)
    B = Atom(6, no=3, R=0.7)
    lattice = Lattice([5.0, 10.0, 10.0], nsc=[3, 1, 1])
    g = Geometry(
        [[float(ia), 0.0, 0.0] for ia in range(5)], atoms=[A, B, A, B, A], lattice=lattice
    )
    bz = BrillouinZone.grid(lattice, [3, 1, 1]).spin_duplicate()
    return g, find_neighbors(g), bz


@pytest.mark.transform
@pytest.mark.parametrize("coord", [(0, 0), (0, 1), (1, 0), (1, 1)])
@pytest.mark.parametrize("nb", [1, 2])
def test_dm_distributed_2d(mixed_chain, nb, coord):
    g, neighbors, bz = mixed_chain
    paraV = ParallelOrbitals.from_geometry(g, nb=nb, grid=(2, 2), coord=coord)
    dm = DensityMatrix(bz, paraV, 2)
    dm.init_DMR(neighbors, g)
    assert len(dm.DMR) == 2

    if nb == 2:
        # the first and last atom each live on a single process row and column
        assert (paraV.get_row_size(0) == 0) != (paraV.get_row_size(4) == 0)
        assert (paraV.get_col_size(0) == 0) != (paraV.get_col_size(4) == 0)
    for pair in dm.DMR[0]:
        assert paraV.get_row_size(pair.iat1) > 0
        assert paraV.get_col_size(pair.iat2) > 0
        assert pair.get_R_size() <= 3
    assert dm.DMR[0].size_atom_pairs() == dm.DMR[1].size_atom_pairs()

    _fill(dm, seed=3)
    dm.cal_DMR()
    fast = [DMR.data.copy() for DMR in dm.DMR]
    dm.cal_DMR()
    for f, DMR in zip(fast, dm.DMR):
        assert np.array_equal(f, DMR.data)
    _assert_expected(dm)

    dm.cal_DMR_test()
    for f, DMR in zip(fast, dm.DMR):
        assert np.allclose(f, DMR.data, rtol=1e-10, atol=0)

def test_dm_ownership_violation(lcaodm_system):
    template = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    template.init_DMR(lcaodm_system.neighbors)

    paraV = ParallelOrbitals.from_geometry(
        lcaodm_system.g, nb=2, grid=(2, 1), coord=(0, 0)
    )
    dm = DensityMatrix(lcaodm_system.bz, paraV, 1)
    dm.init_DMR_from(template.DMR[0])
    assert dm.DMR[0].size_atom_pairs() == 4
    with pytest.raises(OwnershipViolation):
        dm.cal_DMR()


def test_dm_init_DMR_from(lcaodm_system):
    template = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    template.init_DMR(lcaodm_system.neighbors)
    dm = DensityMatrix(lcaodm_system.bz.spin_duplicate(), lcaodm_system.paraV, 2)
    dm.init_DMR_from(template.DMR[0])
    assert len(dm.DMR) == 2
    for DMR in dm.DMR:
        assert isinstance(DMR, SparseBlockMatrix)
        assert DMR.nnz == template.DMR[0].nnz
    _fill(dm)
    dm.cal_DMR()
    _assert_expected(dm)


def test_dm_gamma_validate_R(lcaodm_system):
    template = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    template.init_DMR(lcaodm_system.neighbors)
    dm = DensityMatrix.gamma(lcaodm_system.paraV, 1, validate=True)
    dm.init_DMR_from(template.DMR[0])
    with pytest.raises(ValidationError):
        dm.cal_DMR()


def test_dm_DMK_element(lcaodm_system):
    paraV = lcaodm_system.paraV
    dm = DensityMatrix(lcaodm_system.bz.spin_duplicate(), paraV, 2)
    dm.set_DMK(2, 1, 3, 1, 2.0 + 1.0j)
    assert dm.get_DMK(2, 1, 3, 1) == 2.0 + 1.0j
    # second spin follows the first spin
    buf = dm.get_DMK_pointer(dm.nks + 1)
    assert buf[3 * paraV.nrow + 1] == 2.0 + 1.0j
    assert np.count_nonzero(buf) == 1


def test_dm_DMK_pointer(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    values = np.arange(16).reshape(4, 4)
    dm.set_DMK_pointer(1, values)
    assert np.allclose(dm.get_DMK_pointer(1), values.ravel())
    # the buffer is not shared with the input
    values[0, 0] = 100
    assert dm.get_DMK_pointer(1)[0] == 0
    # but the returned buffer is
    dm.get_DMK_pointer(1)[0] = 5
    assert dm.get_DMK(1, 1, 0, 0) == 5


def test_dm_validate(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1, validate=True)
    with pytest.raises(ValidationError):
        dm.get_DMK(2, 0, 0, 0)
    with pytest.raises(ValidationError):
        dm.get_DMK(1, 3, 0, 0)
    with pytest.raises(ValidationError):
        dm.set_DMK(1, 0, 4, 0, 1.0)
    with pytest.raises(ValidationError):
        dm.get_DMK_pointer(3)
    # ValidationError is an IndexError
    with pytest.raises(IndexError):
        dm.get_DMR_pointer(2)


def test_dm_validate_environ(lcaodm_system):
    with lcaodm_environ(LCAODM_VALIDATE="true"):
        dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    with pytest.raises(ValidationError):
        dm.get_DMK(1, 3, 0, 0)


def test_dm_str(lcaodm_system):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    s = str(dm)
    assert "nks: 3" in s
    assert "ParallelOrbitals" in s


@pytest.mark.io
def test_dm_store_load(lcaodm_system, tmp_path):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    _fill(dm)
    expected = [buf.real.copy() for buf in dm.get_DMK_vector()]
    for ik in range(dm.nks):
        dm.write_DMK(tmp_path, 1, ik)
    assert (tmp_path / "SPIN1_0.dmk").is_file()

    new = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    for ik in range(new.nks):
        new.read_DMK(tmp_path, 1, ik)
    for buf, ref in zip(new.get_DMK_vector(), expected):
        assert np.allclose(buf.real, ref, atol=1e-3)
        assert np.allclose(buf.imag, 0)


@pytest.mark.io
def test_dm_store_load_polarized_gamma(lcaodm_system, tmp_path):
    dm = DensityMatrix.gamma(lcaodm_system.paraV, 2)
    _fill(dm)
    dm.store(tmp_path, 1, 0)
    dm.store(tmp_path, 2, 0)
    assert (tmp_path / "SPIN2_0.dmk").is_file()

    new = DensityMatrix.gamma(lcaodm_system.paraV, 2)
    new.load(tmp_path, 1, 0)
    new.load(tmp_path, 2, 0)
    for buf, ref in zip(new.get_DMK_vector(), dm.get_DMK_vector()):
        assert np.allclose(buf, ref, atol=1e-3)


@pytest.mark.io
def test_dm_load_missing(lcaodm_system, tmp_path):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    _fill(dm)
    before = dm.get_DMK_pointer(0).copy()
    with pytest.warns(MissingSnapshotInfo):
        dm.read_DMK(tmp_path, 1, 0)
    assert np.array_equal(dm.get_DMK_pointer(0), before)


@pytest.mark.io
def test_dm_load_dimension_mismatch(lcaodm_system, tmp_path):
    other = DensityMatrix(lcaodm_system.bz, ParallelOrbitals([2, 2, 2]), 1)
    _fill(other)
    other.write_DMK(tmp_path, 1, 0)

    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    with pytest.warns(DimensionMismatchWarning):
        dm.read_DMK(tmp_path, 1, 0)
    assert np.allclose(dm.get_DMK_pointer(0), 0)

    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1, on_mismatch="raise")
    with pytest.raises(DimensionMismatchError):
        dm.read_DMK(tmp_path, 1, 0)


@pytest.mark.io
def test_dm_load_k_mismatch(lcaodm_system, tmp_path):
    dm = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    _fill(dm)
    dm.write_DMK(tmp_path, 1, 0)
    (tmp_path / "SPIN1_0.dmk").rename(tmp_path / "SPIN1_1.dmk")

    new = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    with pytest.warns(DimensionMismatchWarning):
        new.read_DMK(tmp_path, 1, 1)
    assert np.allclose(new.get_DMK_pointer(1), 0)

    with lcaodm_environ(LCAODM_DIM_MISMATCH="raise"):
        new = DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1)
    with pytest.raises(DimensionMismatchError):
        new.read_DMK(tmp_path, 1, 1)


def test_dm_invalid_mismatch_policy(lcaodm_system):
    with pytest.raises(ValueError):
        DensityMatrix(lcaodm_system.bz, lcaodm_system.paraV, 1, on_mismatch="ignore")
