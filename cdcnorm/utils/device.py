# -*- coding:utf-8 -*-
"""
@author:：Ryuk
@contact: jeryuklau@gmail.com
"""

import numpy as np
import torch


def to_device(data, device, dtype=None):
    """
    Move arrays, tensors and containers of them onto ``device``.
    numpy arrays are copied into a new tensor, so a float64 array stays
    float64 unless ``dtype`` says otherwise.
    """
    if isinstance(data, dict):
        return {k: to_device(v, device, dtype) for k, v in data.items()}
    elif isinstance(data, list):
        return [to_device(i, device, dtype) for i in data]
    elif isinstance(data, tuple):
        return tuple([to_device(i, device, dtype) for i in data])
    elif isinstance(data, np.ndarray):
        return torch.tensor(data, dtype=dtype, device=device)
    elif torch.is_tensor(data):
        if dtype is not None and data.dtype != dtype:
            data = data.to(dtype)
        if data.device != device:
            data = data.to(device)
        return data
    else:
        return data
