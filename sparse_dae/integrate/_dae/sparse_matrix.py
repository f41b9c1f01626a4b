import numpy as np
from scipy.sparse import coo_matrix


class SparseMatrix:
    """Sparse matrix in triplet (COO) format.

    Non-zero elements are stored in three parallel buffers ``A`` (values),
    ``i`` (rows) and ``j`` (columns). Inserting an element with an already
    existing ``(i, j)`` key does not overwrite it; all values with the same
    key are summed up when the matrix is converted to compressed format.

    The buffers are pre-sized and grow geometrically. `clear` keeps the
    allocated capacity, so that refilling a matrix of the same size every
    time step does not reallocate memory.

    Indices are not validated on insertion, use `check` for that.

    Parameters
    ----------
    capacity : int, optional
        Number of elements to pre-allocate. Default is 0.

    Attributes
    ----------
    A : ndarray, shape (nnz,)
        Values of the inserted elements.
    i : ndarray, shape (nnz,)
        Row indices of the inserted elements.
    j : ndarray, shape (nnz,)
        Column indices of the inserted elements.
    capacity : int
        Number of elements that fit into the buffers without reallocation.
    """
    def __init__(self, capacity=0):
        self._A = np.empty(capacity, dtype=float)
        self._i = np.empty(capacity, dtype=np.int64)
        self._j = np.empty(capacity, dtype=np.int64)
        self._nnz = 0

    @property
    def A(self):
        return self._A[:self._nnz]

    @property
    def i(self):
        return self._i[:self._nnz]

    @property
    def j(self):
        return self._j[:self._nnz]

    @property
    def capacity(self):
        return self._A.size

    def __len__(self):
        return self._nnz

    def __call__(self, i, j, A):
        """Add the element ``A`` at row ``i`` and column ``j``."""
        if self._nnz == self._A.size:
            self.reserve(max(2 * self._A.size, 8))
        self._A[self._nnz] = A
        self._i[self._nnz] = i
        self._j[self._nnz] = j
        self._nnz += 1

    insert_or_accumulate = __call__

    def extend(self, i, j, A):
        """Add the elements given by the parallel arrays ``i``, ``j`` and ``A``."""
        i = np.asarray(i).ravel()
        j = np.asarray(j).ravel()
        A = np.asarray(A, dtype=float).ravel()
        if not (i.size == j.size == A.size):
            raise ValueError("`i`, `j` and `A` must be of same size.")
        nnz = self._nnz + A.size
        if nnz > self._A.size:
            self.reserve(max(nnz, 2 * self._A.size))
        self._A[self._nnz:nnz] = A
        self._i[self._nnz:nnz] = i
        self._j[self._nnz:nnz] = j
        self._nnz = nnz

    def reserve(self, N_elements):
        """Make sure at least ``N_elements`` elements fit into the buffers."""
        if N_elements <= self._A.size:
            return
        nnz = self._nnz
        for name in ("_A", "_i", "_j"):
            old = getattr(self, name)
            new = np.empty(N_elements, dtype=old.dtype)
            new[:nnz] = old[:nnz]
            setattr(self, name, new)

    def clear(self):
        """Remove all elements, the allocated capacity is kept."""
        self._nnz = 0

    def check(self, n=None):
        """Check the integrity of the matrix.

        Parameters
        ----------
        n : int, optional
            Matrix size. If given, all indices have to be smaller than ``n``.

        Raises
        ------
        ValueError
            If an index is negative or out of range.
        """
        if not (self._A.size == self._i.size == self._j.size):
            raise ValueError("Sparse matrix buffers are of different size.")
        if self._nnz == 0:
            return
        if self.i.min() < 0 or self.j.min() < 0:
            raise ValueError("Sparse matrix indices must be non-negative.")
        if n is not None and (self.i.max() >= n or self.j.max() >= n):
            raise ValueError(f"Sparse matrix indices must be smaller than {n}.")

    def tocoo(self, n):
        return coo_matrix((self.A, (self.i, self.j)), shape=(n, n))

    def tocsr(self, n):
        """Convert to `scipy.sparse.csr_matrix` with summed duplicates."""
        # coo -> csr sums up duplicate entries
        A = self.tocoo(n).tocsr()
        A.sort_indices()
        return A

    def tocsc(self, n):
        """Convert to `scipy.sparse.csc_matrix` with summed duplicates."""
        A = self.tocoo(n).tocsc()
        A.sort_indices()
        return A

    def to_compressed(self, n):
        """Compressed sparse row representation.

        Returns
        -------
        values : ndarray, shape (nnz,)
            Non-zero values ordered by row, then by column.
        indptr : ndarray, shape (n + 1,)
            ``values[indptr[k]:indptr[k + 1]]`` are the elements of row ``k``.
        indices : ndarray, shape (nnz,)
            Column indices of ``values``.
        """
        A = self.tocsr(n)
        return A.data, A.indptr, A.indices

    def dense(self, n):
        """Convert to a dense ndarray of shape (n, n)."""
        return self.tocoo(n).toarray()
