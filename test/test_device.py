import pytest
import torch

from apgrpca.device import pick_device


def test_cpu_forced():
    assert pick_device("cpu") == torch.device("cpu")


def test_auto_follows_tensor():
    x = torch.zeros(2, 2)
    assert pick_device("auto", like=x) == x.device
    assert pick_device(None, like=x) == x.device


def test_cuda_falls_back_when_unavailable():
    expected = "cuda" if torch.cuda.is_available() else "cpu"
    assert pick_device("cuda").type == expected


def test_invalid_device():
    with pytest.raises(ValueError):
        pick_device("tpu")
