# encoding: utf-8
"""
@author:  Ryuk
@contact: jeryuklau@gmail.com
"""
